#!/usr/bin/env python3
"""Command-line interface for the SSH key manager."""

import argparse
import json
import logging
import sys
from datetime import date
from typing import Any, Optional

from ssh_kim.constants import Constants
from ssh_kim.exceptions import (
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    FileOperationError,
    KeyNotFoundError,
    ValidationError,
)
from ssh_kim.key_manager import SSHKeyManager
from ssh_kim.models import KeyRecord
from ssh_kim.services.record_store import UNSET

# Most specific first
_ERROR_CODES = (
    (KeyNotFoundError, "not_found"),
    (DecryptionError, "decryption_error"),
    (EncryptionError, "encryption_error"),
    (ValidationError, "validation_error"),
    (FileOperationError, "file_error"),
    (ConfigurationError, "configuration_error"),
)


def _record_summary(record: KeyRecord) -> dict[str, Any]:
    """Listing view of a record: key text shortened to a preview."""
    return {
        "id": record.id,
        "name": record.name,
        "tag": record.tag,
        "key_type": record.key_type.value,
        "key_preview": record.material[:Constants.KEY_PREVIEW_LENGTH()],
        "created": record.created.isoformat(),
        "last_modified": record.last_modified.isoformat(),
    }


class KeyManagerCLI:
    """Command-line interface for the SSH key manager."""

    def __init__(self) -> None:
        """Initialize the CLI."""
        self._parser = self._create_parser()
        self._pretty = False

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser.

        Returns:
            Configured argument parser
        """
        parser = argparse.ArgumentParser(
            prog="ssh-kim",
            description="SSH Key Manager - Encrypted storage for SSH keys",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Add a key from a file
  ssh-kim add -n "Work laptop" -t work -f ~/.ssh/id_ed25519.pub

  # List keys tagged "work"
  ssh-kim list --tag work

  # Import every public key found in the usual SSH directories
  ssh-kim import --scan

  # Export two keys, encrypted with a one-off password
  ssh-kim export -f backup.json -i <id1> -i <id2> -p "export-secret"

  # Protect the store with a password and re-encrypt existing keys
  ssh-kim config --set-password "my-store-password" --migrate

  # Use a different store file for one invocation
  ssh-kim -s /tmp/other.enc list
            """,
        )

        # Global arguments
        parser.add_argument(
            "--config-dir",
            help="Configuration directory (default: platform config dir)",
        )
        parser.add_argument(
            "-s",
            "--store",
            help="Encrypted store file for this invocation only (not saved)",
        )
        parser.add_argument(
            "--pretty",
            action="store_true",
            help="Pretty-print JSON outputs",
        )
        parser.add_argument(
            "--discard-unreadable",
            action="store_true",
            help="Treat a store that cannot be decrypted as empty; the next change overwrites it",
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Enable debug logging on stderr",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command",
            help="Available commands",
        )

        # List command
        list_parser = subparsers.add_parser(
            "list",
            help="List stored keys",
        )
        list_parser.add_argument(
            "--search",
            help="Case-insensitive text matched against name, tag and type",
        )
        list_parser.add_argument(
            "--tag",
            help="Only keys with this tag",
        )
        list_parser.add_argument(
            "--type",
            dest="key_type",
            help="Only keys of this type (RSA, DSA, ECDSA, Ed25519, Unknown)",
        )

        # Add command
        add_parser = subparsers.add_parser(
            "add",
            help="Add a key",
        )
        add_parser.add_argument(
            "-n",
            "--name",
            required=True,
            help="Name for the key",
        )
        add_parser.add_argument(
            "-t",
            "--tag",
            help="Tag for the key",
        )
        add_source = add_parser.add_mutually_exclusive_group(required=True)
        add_source.add_argument(
            "-c",
            "--content",
            help="Key text",
        )
        add_source.add_argument(
            "-f",
            "--file",
            help="File containing the key",
        )

        # Edit command
        edit_parser = subparsers.add_parser(
            "edit",
            help="Edit a key",
        )
        edit_parser.add_argument(
            "id",
            help="ID of the key to edit",
        )
        edit_parser.add_argument(
            "-n",
            "--name",
            help="New name",
        )
        edit_parser.add_argument(
            "-t",
            "--tag",
            default=UNSET,
            help='New tag ("" clears it)',
        )
        edit_parser.add_argument(
            "-c",
            "--content",
            help="New key text",
        )
        edit_parser.add_argument(
            "--reclassify",
            action="store_true",
            help="Recompute the key type from the key text",
        )

        # Delete command
        delete_parser = subparsers.add_parser(
            "delete",
            help="Delete a key",
        )
        delete_parser.add_argument(
            "id",
            help="ID of the key to delete",
        )

        # Show command
        show_parser = subparsers.add_parser(
            "show",
            help="Show a key including its full text",
        )
        show_parser.add_argument(
            "id",
            help="ID of the key to show",
        )

        # Scan command
        scan_parser = subparsers.add_parser(
            "scan",
            help="Find public key files without importing them",
        )
        scan_parser.add_argument(
            "-p",
            "--path",
            help="Directory to scan (default: common SSH locations)",
        )

        # Import command
        import_parser = subparsers.add_parser(
            "import",
            help="Import keys",
        )
        import_source = import_parser.add_mutually_exclusive_group(required=True)
        import_source.add_argument(
            "-f",
            "--file",
            help="Export or record file to import",
        )
        import_source.add_argument(
            "-d",
            "--directory",
            help="Directory of *.pub files to import",
        )
        import_source.add_argument(
            "--scan",
            action="store_true",
            help="Import keys found in common SSH locations",
        )
        import_parser.add_argument(
            "-p",
            "--password",
            help="Password the import file was exported with",
        )

        # Export command
        export_parser = subparsers.add_parser(
            "export",
            help="Export keys to a file",
        )
        export_parser.add_argument(
            "-f",
            "--file",
            help="Output file (default: ssh_keys_export_YYYY-MM-DD.json)",
        )
        export_selection = export_parser.add_mutually_exclusive_group()
        export_selection.add_argument(
            "-a",
            "--all",
            action="store_true",
            help="Export every key (default)",
        )
        export_selection.add_argument(
            "-i",
            "--id",
            dest="ids",
            action="append",
            help="ID of a key to export (repeatable)",
        )
        export_parser.add_argument(
            "-p",
            "--password",
            help="Encrypt the export with this password",
        )

        # Config command
        config_parser = subparsers.add_parser(
            "config",
            help="Show or change configuration",
        )
        config_parser.add_argument(
            "--show",
            action="store_true",
            help="Show the effective configuration (default)",
        )
        config_parser.add_argument(
            "--path",
            help="Set a custom store file path",
        )
        config_parser.add_argument(
            "--reset",
            action="store_true",
            help="Reset store path and password to defaults",
        )
        password_group = config_parser.add_mutually_exclusive_group()
        password_group.add_argument(
            "--set-password",
            help=f"Encrypt the store with a password (minimum {Constants.MIN_PASSWORD_LENGTH()} characters)",
        )
        password_group.add_argument(
            "--clear-password",
            action="store_true",
            help="Encrypt the store with the machine identity",
        )
        config_parser.add_argument(
            "--migrate",
            action="store_true",
            help="Re-encrypt existing keys when changing the password",
        )

        return parser

    def _configure_logging(self, verbose: bool) -> None:
        """Send log records to stderr so stdout stays JSON."""
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    def _get_manager(self, args: argparse.Namespace) -> SSHKeyManager:
        """Get SSHKeyManager instance based on arguments."""
        return SSHKeyManager.from_config_dir(
            args.config_dir,
            store_path=args.store,
            allow_empty_on_error=args.discard_unreadable
        )

    def _print_json(self, payload: dict[str, Any]) -> None:
        """Print a JSON payload to stdout."""
        print(json.dumps(payload, indent=2 if self._pretty else None))

    def _print_error(self, *, message: str, code: str = "error", extra: dict[str, Any] | None = None) -> None:
        """Print a JSON error to stderr and exit non-zero."""
        error_obj = {
            "success": False,
            "error_code": code,
            "message": message,
        }
        if extra:
            error_obj["data"] = extra
        print(json.dumps(error_obj, indent=2), file=sys.stderr)
        sys.exit(1)

    def _handle_list(self, args: argparse.Namespace) -> None:
        """Handle list command."""
        manager = self._get_manager(args)
        records = manager.list_keys(
            search=args.search,
            tag=args.tag,
            key_type=args.key_type
        )
        self._print_json({
            "success": True,
            "command": "list",
            "count": len(records),
            "keys": [_record_summary(record) for record in records],
        })

    def _handle_add(self, args: argparse.Namespace) -> None:
        """Handle add command."""
        manager = self._get_manager(args)
        record = manager.add_key(
            name=args.name,
            content=args.content,
            file_path=args.file,
            tag=args.tag
        )
        self._print_json({
            "success": True,
            "command": "add",
            "key": _record_summary(record),
        })

    def _handle_edit(self, args: argparse.Namespace) -> None:
        """Handle edit command."""
        if args.name is None and args.tag is UNSET and args.content is None and not args.reclassify:
            raise ValidationError("Nothing to change: specify --name, --tag, --content or --reclassify")

        manager = self._get_manager(args)
        record = manager.edit_key(
            args.id,
            name=args.name,
            tag=args.tag,
            content=args.content,
            reclassify=args.reclassify
        )
        self._print_json({
            "success": True,
            "command": "edit",
            "key": _record_summary(record),
        })

    def _handle_delete(self, args: argparse.Namespace) -> None:
        """Handle delete command."""
        manager = self._get_manager(args)
        record = manager.delete_key(args.id)
        self._print_json({
            "success": True,
            "command": "delete",
            "id": record.id,
            "name": record.name,
        })

    def _handle_show(self, args: argparse.Namespace) -> None:
        """Handle show command."""
        manager = self._get_manager(args)
        record = manager.get_key(args.id)
        self._print_json({
            "success": True,
            "command": "show",
            "key": record.to_dict(),
        })

    def _handle_scan(self, args: argparse.Namespace) -> None:
        """Handle scan command."""
        manager = self._get_manager(args)
        found = manager.scan_keys(args.path)
        self._print_json({
            "success": True,
            "command": "scan",
            "count": len(found),
            "keys": [key.to_dict() for key in found],
        })

    def _handle_import(self, args: argparse.Namespace) -> None:
        """Handle import command."""
        if args.password and not args.file:
            raise ValidationError("--password only applies to --file imports")

        manager = self._get_manager(args)
        if args.file:
            result = manager.import_from_file(args.file, password=args.password)
            source = args.file
        elif args.directory:
            result = manager.import_from_directory(args.directory)
            source = args.directory
        else:
            result = manager.import_from_scan()
            source = "scan"

        self._print_json({
            "success": True,
            "command": "import",
            "source": source,
            "imported": result.imported_count,
            "duplicates": result.duplicate_count,
        })

    def _handle_export(self, args: argparse.Namespace) -> None:
        """Handle export command."""
        output_path = args.file or f"ssh_keys_export_{date.today().isoformat()}.json"

        manager = self._get_manager(args)
        document = manager.export_keys(
            output_path,
            ids=args.ids,
            password=args.password
        )
        self._print_json({
            "success": True,
            "command": "export",
            "file": output_path,
            "count": document.total_count,
            "encrypted": bool(args.password),
        })

    def _handle_config(self, args: argparse.Namespace) -> None:
        """Handle config command."""
        changes_requested = bool(args.path or args.reset or args.set_password or args.clear_password)

        if args.migrate and not (args.set_password or args.clear_password):
            raise ValidationError("--migrate requires --set-password or --clear-password")
        if args.store and changes_requested:
            raise ValidationError("--store cannot be combined with configuration changes")

        manager = self._get_manager(args)
        changed = []

        if args.reset:
            manager.reset_config()
            changed.append("reset")
        if args.path:
            manager.set_file_path(args.path)
            changed.append("keys_file_path")
        if args.set_password:
            manager.set_password(args.set_password, migrate=args.migrate)
            changed.append("encryption_password")
        elif args.clear_password:
            manager.clear_password(migrate=args.migrate)
            changed.append("encryption_password")

        self._print_json({
            "success": True,
            "command": "config",
            "changed": changed,
            "migrated": bool(args.migrate and changed),
            "config": manager.show_config(),
        })

    def run(self, args: Optional[list[str]] = None) -> None:
        """Run the CLI with given arguments."""
        try:
            parsed_args = self._parser.parse_args(args)
            self._pretty = bool(getattr(parsed_args, "pretty", False))
            self._configure_logging(bool(getattr(parsed_args, "verbose", False)))

            if not parsed_args.command:
                self._print_error(message="No command specified", code="missing_command")

            handlers = {
                "list": self._handle_list,
                "add": self._handle_add,
                "edit": self._handle_edit,
                "delete": self._handle_delete,
                "show": self._handle_show,
                "scan": self._handle_scan,
                "import": self._handle_import,
                "export": self._handle_export,
                "config": self._handle_config,
            }
            handler = handlers.get(parsed_args.command)
            if handler is None:
                self._print_error(message=f"Unknown command: {parsed_args.command}", code="unknown_command")
            handler(parsed_args)

        except KeyboardInterrupt:
            self._print_error(message="Operation cancelled by user", code="cancelled")
        except Exception as e:
            for error_type, code in _ERROR_CODES:
                if isinstance(e, error_type):
                    self._print_error(message=str(e), code=code)
            self._print_error(message=str(e), code="unexpected_error")


def main() -> None:
    """Main entry point for the CLI."""
    cli = KeyManagerCLI()
    cli.run()


if __name__ == "__main__":
    main()
