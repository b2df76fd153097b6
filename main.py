#!/usr/bin/env python3
"""
Color Look Processor
Main application entry point
"""

import sys
import signal
import logging
import argparse
import yaml
from pathlib import Path
from typing import List, Optional
from colorama import init, Fore, Style
from folder_watcher import FolderWatcher, supported_extensions
from image_processor import ImageProcessor

# Initialize colorama for colored console output
init(autoreset=True)


def setup_logging(config: dict):
    """Setup logging configuration"""
    log_config = config.get('logging', {}) or {}
    log_level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    log_file = log_config.get('file')
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if log_config.get('console', True):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)


def resolve_path(path_str: str, base_dir: Path) -> Path:
    """
    Resolve a path string to an absolute Path.
    Relative paths are resolved against base_dir, absolute paths are kept.
    """
    path = Path(path_str)
    if path.is_absolute():
        return path
    return (base_dir / path).resolve()


def load_config(config_path: str = 'config.yaml') -> dict:
    """Load configuration from YAML file"""
    config_file = Path(config_path).resolve()

    if not config_file.exists():
        print(f"{Fore.RED}Error: Configuration file not found: {config_path}")
        print(f"{Fore.YELLOW}Please create a config.yaml file. See config.yaml in the repository for an example.")
        sys.exit(1)

    config_dir = config_file.parent

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        required_keys = ['watch_folder', 'output_folder']
        for key in required_keys:
            if key not in config:
                print(f"{Fore.RED}Error: Missing required configuration: {key}")
                sys.exit(1)

        config['watch_folder'] = str(resolve_path(config['watch_folder'], config_dir))
        config['output_folder'] = str(resolve_path(config['output_folder'], config_dir))

        look = config.get('look') or {}
        if look.get('lut'):
            look['lut'] = str(resolve_path(look['lut'], config_dir))
        config['look'] = look

        log_file = (config.get('logging') or {}).get('file')
        if log_file:
            config['logging']['file'] = str(resolve_path(log_file, config_dir))

        return config

    except yaml.YAMLError as e:
        print(f"{Fore.RED}Error: Failed to parse configuration file: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"{Fore.RED}Error: Failed to load configuration: {e}")
        sys.exit(1)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply color looks to images")
    parser.add_argument('-c', '--config', default='config.yaml', help="path to the YAML config")
    parser.add_argument('images', nargs='*',
                        help="images to process once; watch the configured folder when omitted")
    return parser.parse_args(argv)


def process_files(processor: ImageProcessor, images: List[str], output_folder: Path) -> int:
    """Process the given images once; returns the number of failures"""
    failures = 0
    for image in images:
        output_path = processor.output_path_for(Path(image), output_folder)
        if processor.process_image(image, str(output_path)):
            print(f"{Fore.GREEN}{Path(image).name} -> {output_path}")
        else:
            print(f"{Fore.RED}Failed: {image}")
            failures += 1
    return failures


def main(argv: Optional[List[str]] = None):
    """Main application entry point"""
    args = parse_args(argv)

    print(f"{Fore.CYAN}{'='*60}")
    print(f"{Fore.CYAN}Color Look Processor")
    print(f"{Fore.CYAN}{'='*60}{Style.RESET_ALL}\n")

    config = load_config(args.config)

    setup_logging(config)
    logger = logging.getLogger(__name__)

    try:
        processor = ImageProcessor(config)
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Invalid look configuration: {e}", exc_info=True)
        print(f"{Fore.RED}Error: Invalid look configuration: {e}")
        sys.exit(1)

    output_folder = Path(config['output_folder'])

    if args.images:
        failures = process_files(processor, args.images, output_folder)
        sys.exit(1 if failures else 0)

    logger.info("Starting Color Look Processor")
    try:
        watcher = FolderWatcher(config['watch_folder'], str(output_folder), processor, config)
        print(f"{Fore.GREEN}Watching input folder: {config['watch_folder']}")
        print(f"{Fore.GREEN}Writing results to: {output_folder}")
        print(f"{Fore.GREEN}Extensions: {', '.join(sorted(supported_extensions(config)))}{Style.RESET_ALL}\n")
    except Exception as e:
        logger.error(f"Failed to initialize folder watcher: {e}", exc_info=True)
        print(f"{Fore.RED}Error: Failed to start folder watcher: {e}")
        sys.exit(1)

    def signal_handler(sig, frame):
        print(f"\n{Fore.YELLOW}Shutting down...{Style.RESET_ALL}")
        logger.info("Received shutdown signal")
        watcher.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        watcher.start()
        print(f"{Fore.CYAN}Application running. Press Ctrl+C to stop.{Style.RESET_ALL}\n")

        for thread in watcher.processing_threads:
            thread.join()

    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}Interrupted by user{Style.RESET_ALL}")
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"{Fore.RED}Fatal error: {e}{Style.RESET_ALL}")
        sys.exit(1)
    finally:
        watcher.stop()
        logger.info("Application stopped")


if __name__ == '__main__':
    main()
