"""Iconforge health monitor — out-of-band probes of published artifacts.

The monitor never mutates pipeline state.  It reads what clients read.

Modules
-------
health
    ``HealthMonitor`` probes the manifest and every bundle and classifies
    the result as OK, WARNING or CRITICAL.
renderer
    ``ReportRenderer`` turns health reports, deployment records and
    build results into Rich renderables for terminal display.
"""
