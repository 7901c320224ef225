"""Remote module package registry access and the local package cache."""
