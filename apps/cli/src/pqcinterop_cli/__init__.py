"""Command line front-end for the interoperability verifier."""
