"""Building blocks for synchronising resources from many clusters: informer storage, version negotiation, retry timing, feature gates and cluster status."""

__version__ = "0.1.0"