"""
CLI layer for gpr-tool.

Typer commands build a command description (:mod:`gpr.commands`) and hand it
to the dispatcher. This package only handles terminal transport: argument
parsing, signal wiring, coloured output and tables.

Entry point::

    gpr --help
"""
