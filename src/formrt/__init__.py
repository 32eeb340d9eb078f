"""
Form Runtime (formrt) Package

The deterministic evaluation core shared by every surface that renders a
form: the authoring canvas, the preview modal and the embeddable widget.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Persistence or realtime sync
    - DOM, iframe or postMessage mounting
    - Network I/O
    - Theming

Given a form definition and an answer set it computes:
    - the packed grid layout       (formrt.layout)
    - the visible field subset     (formrt.logic)
    - calculated field values      (formrt.calculations)
    - personalized text            (formrt.recall)

Every entry point is a pure function of its inputs.
"""

__version__ = "0.1.0"
