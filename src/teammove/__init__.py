# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""TeamMove - carpool coordination for sports events."""

__version__ = "1.0.0"
