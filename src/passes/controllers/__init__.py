from .passes import PassController
from .scanner import ScannerController

__all__ = ["PassController", "ScannerController"]
