#!/usr/bin/env python3
"""Example usage of the SSH key manager with a throwaway store."""

import os
import tempfile
from pathlib import Path

from ssh_kim import KeyStoreConfig, SSHKeyManager


SAMPLE_KEYS = {
    "id_rsa.pub": "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC7vbqajDhA0kq2eWIpyZvQ alice@laptop",
    "id_ed25519.pub": "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIGq3Jv6nW8yKp5ZbX2Qv8xQ9 alice@desktop",
}


def main():
    """Demonstrate adding, searching, exporting and importing keys."""

    # Create a temporary directory for this example
    with tempfile.TemporaryDirectory() as temp_dir:
        print(f"Using temporary directory: {temp_dir}")

        config = KeyStoreConfig(
            keys_file_path=os.path.join(temp_dir, "ssh_keys.enc"),
            config_path=Path(temp_dir) / "config.json",
        )
        manager = SSHKeyManager(config)

        print(f"Store file: {manager.show_config()['keys_file_path']}")
        print(f"Encryption mode: {manager.show_config()['encryption_mode']}")
        print()

        # Add keys directly
        print("Adding keys...")
        work = manager.add_key(name="Work laptop", content=SAMPLE_KEYS["id_rsa.pub"], tag="work")
        print(f"Added {work.name} ({work.key_type.value}) with ID: {work.id}")

        # Import a directory of public keys
        key_dir = Path(temp_dir) / "pubkeys"
        key_dir.mkdir()
        for file_name, material in SAMPLE_KEYS.items():
            (key_dir / file_name).write_text(material + "\n", encoding="utf-8")

        result = manager.import_from_directory(str(key_dir))
        print(f"Imported {result.imported_count} keys, skipped {result.duplicate_count} duplicates")
        print()

        print("Listing all keys:")
        for record in manager.list_keys():
            print(f"  - {record.name} [{record.key_type.value}] tag={record.tag} (ID: {record.id})")
        print()

        print("Searching for Ed25519 keys:")
        for record in manager.list_keys(key_type="ed25519"):
            print(f"  - {record.name}")
        print()

        # Export with a one-off password
        export_file = os.path.join(temp_dir, "backup.json")
        document = manager.export_keys(export_file, password="backup-password")
        print(f"Exported {document.total_count} keys to {export_file}")

        # Protect the store with a password, re-encrypting existing keys
        manager.set_password("store-password", migrate=True)
        print(f"Encryption mode: {manager.show_config()['encryption_mode']}")
        print(f"Keys still readable: {manager.key_count}")

        # Importing the export again finds only duplicates
        result = manager.import_from_file(export_file, password="backup-password")
        print(f"Re-import: {result.imported_count} imported, {result.duplicate_count} duplicates")

        print("\nDemonstration completed successfully!")


if __name__ == "__main__":
    main()
