"""
Application Package

Hosting adapters for the coin functions:
- main: FastAPI application (long-running server)
- functions: event-dict entry points for serverless runtimes
"""
