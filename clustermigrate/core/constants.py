"""Shared constants for the KubernetesService migration.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

# =============================================================================
# Legacy Service Tags
# =============================================================================

# services.category value for deployment integrations
SERVICE_CATEGORY_DEPLOYMENT = "deployment"

# services.type value for the legacy Kubernetes integration
SERVICE_TYPE_KUBERNETES = "KubernetesService"

# Key written into services.properties once a record has been migrated
MIGRATED_PROPERTY = "migrated"

# =============================================================================
# Cluster Defaults
# =============================================================================

# Legacy records never carried a cluster name
DEFAULT_KUBERNETES_SERVICE_CLUSTER_NAME = "KubernetesService"

# =============================================================================
# Encryption Key Contexts
# =============================================================================

LEGACY_TOKEN_CONTEXT = "services.token"
PLATFORM_TOKEN_CONTEXT = "cluster_platforms_kubernetes.token"

# =============================================================================
# Migration Defaults
# =============================================================================

# One record per batch keeps row locks short on the live services table
DEFAULT_BATCH_SIZE = 1

# wait_for_db() retry policy
DB_CONNECT_RETRIES = 5
DB_CONNECT_RETRY_DELAY = 2.0
