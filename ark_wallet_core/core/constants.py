"""Protocol constants shared across components."""

ARKNOTE_HRP = "arknote"
# Notes shorter than this are not valid bearer tokens
ARKNOTE_MIN_LENGTH = 56

# Fee charged by this wallet for Ark-to-Ark payments
DEFAULT_ARK_FEE = 0

SATS_PER_BTC = 100_000_000
MS_PER_SEC = 1000
EXPIRING_SOON_MS = 24 * 60 * 60 * MS_PER_SEC

# Rough block interval used to turn block-based timelocks into seconds
SECONDS_PER_BLOCK = 600
