"""
Core Package

Contains the provider-agnostic core logic including:
- config: Settings loaded from the environment
- logging: Application logger setup
- errors: Error taxonomy mapped to HTTP statuses
- schemas: Pydantic models for normalized coin data
- normalization: Upstream record -> schema mapping
"""
