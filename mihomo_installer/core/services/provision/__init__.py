"""
Provisioning service — installs the mihomo core on this host.

Organised in onion layers, inner layers never import outer ones:

    data          L0  constants, config and unit templates
    domain        L1  pure logic: deadline, asset matching, rendering
    detection     L3  read-only host probes
    execution     L4  side effects: HTTP, files, subprocesses
    orchestration L5  the install pipeline
"""
