# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Authentication"""
from .dependencies import User, get_current_user, require_admin

__all__ = ["User", "get_current_user", "require_admin"]
