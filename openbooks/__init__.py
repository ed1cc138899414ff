"""OpenBooks client core: journal entry balancing and quotation lifecycle."""

__version__ = "1.0.0"
