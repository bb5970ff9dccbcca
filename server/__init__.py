"""hexsearch query API and crawler process."""
