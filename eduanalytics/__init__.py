# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""EduAnalytics: multi-tenant school results analytics service."""

__version__ = "1.0.0"
