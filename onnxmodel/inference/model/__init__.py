# inference/model/__init__.py

"""
Model runtime package.
Provides the Model wrapper and backend implementations.
"""

from .wrapper import InitSettings, Model, make_backend
