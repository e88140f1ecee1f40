"""Version information for ZenArchive."""

__version__ = "0.1.0"
__version_info__ = (0, 1, 0)

# Release information
__author__ = "Open Science Network"
__license__ = "GNU Affero General Public License v3.0"
__description__ = "DOI archival for discussion threads via Zenodo and InvenioRDM"
