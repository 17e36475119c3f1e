"""Client operations for a vector database service, run through a service object you supply."""

__version__ = "0.1.0"