"""Score persistence: append run records and read ranked views of them."""
