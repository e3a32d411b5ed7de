# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP API layer.

This package exposes the exam workflow, enrollment and access ledger
services over FastAPI.
"""

from src.api.app import create_app

__all__ = ["create_app"]
