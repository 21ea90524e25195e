"""
Dotted configuration keys other subsystems depend on.
"""

DATABASE_DIR = "database.dir"
DATABASE_RESET = "database.reset"

PEER_LISTEN_PORT = "peer.listen.port"
PEER_ACTIVE = "peer.active"
PEER_TRUSTED = "peer.trusted"
PEER_PRIVATE_KEY = "peer.privateKey"
PEER_NODE_NAME_HASH = "peer.nodeNameHash"
PEER_NETWORK_ID = "peer.networkId"
PEER_MAX_ACTIVE = "peer.maxActivePeers"

PEER_DISCOVERY_ENABLED = "peer.discovery.enabled"
PEER_DISCOVERY_BIND_IP = "peer.discovery.bind.ip"
PEER_DISCOVERY_EXTERNAL_IP = "peer.discovery.external.ip"

BLOCKCHAIN_CONFIG_NAME = "blockchain.config.name"
BLOCKCHAIN_CONFIG_CLASS = "blockchain.config.class"

SYNC_ENABLED = "sync.enabled"
GENESIS = "genesis"
