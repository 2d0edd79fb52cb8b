"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Slug generation
MAX_SLUG_LENGTH = 63
SLUG_SUFFIX_LENGTH = 4

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_ROLE_NAME_LENGTH = 60
MAX_ROLE_DESCRIPTION_LENGTH = 200
MAX_PERMISSION_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 255
MAX_CURRENCY_LENGTH = 3
MAX_TIMEZONE_LENGTH = 64
MAX_STATUS_LENGTH = 16

# Password requirements
MIN_PASSWORD_LENGTH = 8
# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72
MAX_PASSWORD_LENGTH = MAX_PASSWORD_BYTES
TEMP_PASSWORD_BYTES = 12

# Pagination defaults
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Token settings
TOKEN_JTI_LENGTH = 16

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Tenant defaults
DEFAULT_CURRENCY = "USD"
DEFAULT_TIMEZONE = "UTC"

# Seeded role names
OWNER_ROLE = "Owner"
ADMIN_ROLE = "Admin"

# Universal permission wildcard
WILDCARD_PERMISSION = "*"

# Request headers
TENANT_HEADER = "X-Tenant-ID"
REQUEST_ID_HEADER = "X-Request-ID"
