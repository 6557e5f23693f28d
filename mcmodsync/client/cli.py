#!/usr/bin/env python3
"""
Minecraft Mod Sync Client - Command Line Interface
Synchronizes a local mods folder with a mcmodsync server
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

from mcmodsync.client.config.manager import DEFAULT_CONFIG_FILE, ConfigManager
from mcmodsync.client.network.connection_manager import ModSyncAPI
from mcmodsync.client.sync import DELETE, ModSynchronizer, SyncReport
from mcmodsync.shared.exceptions import ModSyncError
from mcmodsync.shared.utils.log import setup_logger

logger = logging.getLogger(__name__)


def find_mods_folders(root) -> List[Path]:
    """Find every folder named 'mods' below root"""
    found = []
    for dirpath, dirnames, _ in os.walk(root):
        dirnames.sort()
        if Path(dirpath).name == "mods":
            found.append(Path(dirpath))
    return found


class CLIModSyncApp:
    """Command line front end around ModSynchronizer"""

    def __init__(self, config_manager: ConfigManager, input_func: Callable[[str], str] = input):
        self.config_manager = config_manager
        self.input = input_func

    def ask_confirmation(self, action: str, names: List[str]) -> bool:
        """Print the affected files and ask y/n"""
        verb = "deleted" if action == DELETE else "downloaded"
        print(f"The following mods will be {verb}:")
        for name in names:
            print(f"  - {name}")
        answer = self.input("Proceed? (y/n): ")
        return answer.strip().lower() in ("y", "yes")

    def choose_mods_folder(self, search_root=".") -> Optional[Path]:
        """Let the user pick one of the 'mods' folders found below search_root"""
        folders = find_mods_folders(search_root)
        if not folders:
            logger.error(f"❌ No 'mods' folder found below {Path(search_root).resolve()}")
            return None

        print("Found the following mods folders:")
        for i, folder in enumerate(folders, start=1):
            print(f"  {i}. {folder}")
        answer = self.input("Enter the number of your mods folder: ")
        try:
            index = int(answer.strip())
        except ValueError:
            logger.error(f"❌ Not a number: {answer!r}")
            return None
        if not 1 <= index <= len(folders):
            logger.error(f"❌ No folder with number {index}")
            return None
        return folders[index - 1]

    def resolve_mods_folder(self, override: Optional[str] = None) -> Optional[Path]:
        """Mods folder from the command line, the config, or an interactive choice saved to the config"""
        if override:
            return Path(override)
        configured = self.config_manager.get_mods_folder()
        if configured:
            return Path(configured)

        chosen = self.choose_mods_folder()
        if chosen is not None:
            self.config_manager.set_mods_folder(chosen)
            self.config_manager.save_config()
            logger.info(f"Saved mods folder {chosen} to {self.config_manager.config_file}")
        return chosen

    def build_synchronizer(self, mods_folder: Path, assume_yes: bool = False,
                           workers: Optional[int] = None) -> ModSynchronizer:
        connection = self.config_manager.get_connection_settings()
        download = self.config_manager.get_download_settings()
        api = ModSyncAPI.from_config(connection, chunk_size=download['chunk_size'])
        return ModSynchronizer(
            api,
            mods_folder,
            max_workers=workers or download['max_workers'],
            verify_hashes=download['verify_hashes'],
            confirm=None if assume_yes else self.ask_confirmation,
        )

    def sync(self, mods_folder: Path, assume_yes: bool = False, dry_run: bool = False,
             workers: Optional[int] = None) -> Optional[SyncReport]:
        """Run a synchronization; returns None when a setup step failed"""
        try:
            synchronizer = self.build_synchronizer(mods_folder, assume_yes, workers)
            return synchronizer.run(dry_run=dry_run)
        except (ModSyncError, OSError, ValueError) as e:
            logger.error(f"🔥 Sync aborted: {e}")
            return None


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='mcmodsync-client', description='Minecraft Mod Sync Client (CLI)')
    parser.add_argument('--config', default=DEFAULT_CONFIG_FILE, help='client INI settings file')
    parser.add_argument('--server', help='server base URL, e.g. http://host:25555')
    parser.add_argument('--mods-folder', help='path to the local mods folder')
    parser.add_argument('--workers', type=int, help='number of parallel downloads')
    parser.add_argument('--yes', '-y', action='store_true', help='do not ask before deleting or downloading')
    parser.add_argument('--dry-run', action='store_true', help='only show what would change')
    parser.add_argument('--no-pause', action='store_true', help='do not wait for Enter before exiting')
    parser.add_argument('--log-level', default='info', help='debug, info, warning or error')
    return parser.parse_args(argv)


def main(argv=None, input_func: Callable[[str], str] = input) -> int:
    args = parse_args(argv)

    exit_code = 1
    try:
        setup_logger("mcmodsync", args.log_level)
        config_manager = ConfigManager(args.config)
        if args.server:
            config_manager.update_setting('connection', 'server_url', args.server)
        if args.workers is not None and args.workers < 1:
            raise ValueError(f"--workers must be at least 1, got {args.workers}")

        app = CLIModSyncApp(config_manager, input_func)
        mods_folder = app.resolve_mods_folder(args.mods_folder)
        if mods_folder is not None:
            report = app.sync(mods_folder, assume_yes=args.yes, dry_run=args.dry_run, workers=args.workers)
            if report is not None:
                print(f"Done - {report.summary()}")
                exit_code = 0 if report.ok else 1
    except ValueError as e:
        logger.error(f"❌ {e}")

    if not args.no_pause:
        input_func("\nPress Enter to exit...")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
