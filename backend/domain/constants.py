"""
Domain constants used across services/routers.
"""

# A source event listing more performers than this is a festival
FESTIVAL_PERFORMER_THRESHOLD = 6

# Venue name stored when the source event carries none
UNKNOWN_VENUE = "unknown"

# Ticketmaster status code for events with tickets on sale
ON_SALE_STATUS = "onsale"

# Minimum query length for band search endpoints
MIN_SEARCH_LENGTH = 2

WISHLIST_NAME_MAX_LENGTH = 100
