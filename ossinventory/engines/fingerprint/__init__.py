"""Per-file checksum sets."""

from ossinventory.engines.fingerprint.calculator import FingerprintCalculator, is_binary
from ossinventory.engines.fingerprint.models import Fingerprint, SuperHash

__all__ = ["Fingerprint", "FingerprintCalculator", "SuperHash", "is_binary"]
