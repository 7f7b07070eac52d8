"""
Provisioning service — install and remove the hifi-wifi agent.

Onion layers, imported one way only (lower never imports higher):

    data → domain → detection → execution → orchestration

Entry points live in ``orchestration``::

    from hifi_setup.core.services.provision.orchestration.installer import Installer
    from hifi_setup.core.services.provision.orchestration.reversal import ReversalOrchestrator
"""
