import os

# Alternate "id: brand" table for Pattern Maker thread brands.
THREAD_BRANDS_PATH = os.getenv("XSP_THREAD_BRANDS_PATH")
# Identification written into the OXS <properties> element.
OXS_SOFTWARE = os.getenv("XSP_OXS_SOFTWARE", "xsp-parsers")
OXS_SOFTWARE_VERSION = os.getenv("XSP_OXS_SOFTWARE_VERSION", "0.1.0")
