"""Application constants.

This module contains magic strings and numbers used throughout the application.
Centralizing these values makes them easier to maintain and modify.
"""

# Passcode Configuration
# Passcodes are 6-digit numeric strings typed by members
PASSCODE_LENGTH = 6
PASSCODE_PATTERN = r"^[0-9]{6}$"

# Attempts at drawing a passcode not used by another active session
PASSCODE_MAX_ATTEMPTS = 20

# Check-in Session Configuration
# Default lifetime when the leader supplies no explicit times
DEFAULT_SESSION_MINUTES = 15

# QR Token Configuration
# Random nonce bytes embedded in each QR token
QR_NONCE_BYTES = 16
# Length of the truncated HMAC signature carried in the token
QR_SIGNATURE_LENGTH = 16
QR_TOKEN_PREFIX = "ci1"

# Roles supplied by the identity provider
ROLE_MEMBER = "member"
ROLE_LEADER = "leader"
ROLE_ADMIN = "admin"
ROLES = (ROLE_MEMBER, ROLE_LEADER, ROLE_ADMIN)

# Club membership status values
MEMBERSHIP_APPROVED = "approved"
MEMBERSHIP_PENDING = "pending"

# Check-in methods
METHOD_QR = "qr"
METHOD_PASSCODE = "passcode"

# JWT Token Configuration
# Token expiration time in minutes (8 hours)
ACCESS_TOKEN_EXPIRE_MINUTES = 480
