"""ZenArchive - DOI archival of discussion threads via Zenodo and InvenioRDM."""

from zenarchive.__version__ import __version__, __author__, __license__, __description__

__all__ = ['__version__', '__author__', '__license__', '__description__']
