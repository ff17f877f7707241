"""aliaslinker: normalize bare alias wiki links to explicit [[Filename|Alias]] links."""

__version__ = "0.1.0"
