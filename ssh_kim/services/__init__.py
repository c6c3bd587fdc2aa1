"""Services package for the SSH key manager."""

from ssh_kim.services.record_store import RecordStore
from ssh_kim.services.scan_service import ScanService, ScannedKey
from ssh_kim.services.transfer_service import TransferService

__all__ = [
    "RecordStore",
    "ScanService",
    "ScannedKey",
    "TransferService",
]
