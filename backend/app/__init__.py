"""Application package for the Innovatux communities backend.

This package exposes the service, repository and model modules used by
the FastAPI application, plus the sign-up form validator and the client
that submits it. Individual modules contain the concrete
implementations and documentation.
"""
