"""Academy Exam Workflow Backend.

Exam approval workflow, delegated-access auditing and cohort enrollment
services for academic institutions.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
