"""Iconforge runtime — icon resolution inside the consuming application.

Modules
-------
resolver
    ``RuntimeIconResolver`` turns (section, name) into a sprite reference
    using the published manifest, fetched once per process.
dynamic_tags
    ``DynamicTagResolver`` maps content-system tags to asset URLs.
dispatch
    ``resolve_use`` serves a use-site through the path its authoring-time
    classification selects.
"""
