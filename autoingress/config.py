"""Configuration settings for the Tailscale Auto-Ingress Controller."""

# Opt-in annotation on Services
AUTO_INGRESS_ANNOTATION = "jsgtechnology.com/tailscale-autoingress"
# Annotation value meaning "use the Service name as hostname"
HOSTNAME_FROM_SERVICE_VALUE = "true"

# Ingress settings
INGRESS_CLASS_NAME = "tailscale"
INGRESS_CLASS_ANNOTATION = "kubernetes.io/ingress.class"
INGRESS_NAME_SUFFIX = "-ingress"
INGRESS_PATH = "/"
INGRESS_PATH_TYPE = "Prefix"

# Label stamped on created Ingresses (informational only)
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY_VALUE = "tailscale-autoingress"

# Watch settings
WATCH_TIMEOUT_SECONDS = 300
WATCH_RETRY_DELAY_SECONDS = 5
RESYNC_PERIOD_SECONDS = 600
