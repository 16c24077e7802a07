"""
Shared Kernel Module
====================

Generic infrastructure used by the SLA module.

DO NOT add SLA business logic to the shared kernel.
"""
