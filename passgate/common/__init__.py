# Common utilities
from passgate.common.crypto import CryptoUtils as CryptoUtils
from passgate.common.logging_utils import setup_logger as setup_logger

__all__ = ["CryptoUtils", "setup_logger"]
