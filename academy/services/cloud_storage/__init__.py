from .slip_storage_service import SlipStorageService, StoredSlip

__all__ = ["SlipStorageService", "StoredSlip"]
