"""vendorpatch - resolve, validate and install vendor update packages."""

__version__ = "0.1.0"
