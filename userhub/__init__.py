"""
UserHub API package.

One FastAPI application, started either as a long-running server
(``userhub.bootstrap``) or per invocation behind a function or edge
runtime (``userhub.handler``).
"""
