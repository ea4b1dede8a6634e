"""Command-line interface for texture export."""

import argparse
import logging
import os
import sys

from .config import ExportConfig
from .core import setup_logging

logger = logging.getLogger("texrepack")


def main(argv=None):
    """Parse CLI arguments, run the export session, and set the exit code."""
    parser = argparse.ArgumentParser(
        description="Repack material textures into metallic-roughness maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  texrepack --manifest assets.yaml --output ./Data
  texrepack --config export.yaml
  texrepack -m assets.yaml -o ./Data --dry-run
  texrepack --generate-config
        """
    )
    parser.add_argument("--manifest", "-m", help="Asset manifest YAML")
    parser.add_argument("--output", "-o", help="Output directory")
    parser.add_argument("--config", "-c", help="Path to config YAML")
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--no-overwrite", action="store_true",
                        help="Keep existing output files")
    parser.add_argument("--workers", type=int, help="Max parallel workers")
    parser.add_argument("--generate-config", action="store_true",
                        help="Generate default config.yaml")
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

    args = parser.parse_args(argv)

    if args.generate_config:
        config = ExportConfig()
        dest = args.config or args.output or "config.yaml"
        if os.path.isdir(dest):
            dest = os.path.join(dest, "config.yaml")
        config.to_yaml(dest)
        logger.info("Generated default %s", dest)
        print(f"Generated default {dest}")
        return

    # Make config warnings visible before full logging is configured.
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    if args.config:
        if not os.path.exists(args.config):
            logger.error("Config file not found: %s", args.config)
            print(f"Error: Config file not found: {args.config}")
            sys.exit(1)
        try:
            config = ExportConfig.from_yaml(args.config)
        except ValueError as e:
            logger.error("Invalid config file '%s': %s", args.config, e)
            print(f"Error: Invalid config: {e}")
            sys.exit(1)
    else:
        config = ExportConfig()

    # CLI overrides
    if args.manifest:
        config.manifest_path = args.manifest
    if args.output:
        config.output_dir = args.output
    if args.workers is not None:
        config.max_workers = args.workers
    if args.dry_run:
        config.dry_run = True
    if args.no_overwrite:
        config.overwrite = False
    if args.log_level:
        config.log_level = args.log_level

    if not config.manifest_path or not os.path.isfile(config.manifest_path):
        logger.error("Manifest not found: %s", config.manifest_path)
        print(f"Error: Manifest not found: {config.manifest_path}")
        sys.exit(1)

    try:
        config.validate()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    log_file = None
    if not config.dry_run:
        os.makedirs(config.output_dir, exist_ok=True)
        log_file = os.path.join(config.output_dir, "texrepack.log")
    setup_logging(config.log_level, log_file)

    from .pipeline import ExportSession, ExportCancelledError
    try:
        session = ExportSession(config)
    except ValueError as e:
        logger.error("Invalid manifest: %s", e)
        print(f"Error: Invalid manifest: {e}")
        sys.exit(1)

    try:
        summary = session.run()
    except (KeyboardInterrupt, ExportCancelledError):
        session.request_cancel()
        logger.warning("Export interrupted.")
        sys.exit(130)

    if summary["failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
