"""Constants for the Static Site Operator."""

# API Group
API_GROUP = "rootster.xyz"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_STATIC_SITE = "StaticSite"
PLURAL_STATIC_SITE = "staticsites"
KIND_CONFIG_MAP = "ConfigMap"
KIND_DEPLOYMENT = "Deployment"
KIND_SERVICE = "Service"
KIND_INGRESS = "Ingress"

# Labels
LABEL_APP_NAME = "app.kubernetes.io/name"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"
APP_NAME = "webapp"

# Annotations
ANNOTATION_ROLLOUT_HASH = f"{API_GROUP}/rollout-hash"

# Finalizers
FINALIZER = f"{PLURAL_STATIC_SITE}.{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "static-site-operator"

# Content server
DEFAULT_IMAGE = "nginx:latest"
CONTAINER_NAME = "nginx"
HTTP_PORT = 80
HTML_VOLUME = "html"
HTML_KEY = "index.html"
DOCUMENT_ROOT = "/usr/share/nginx/html"
DEFAULT_HTML = "<!doctype html><html><body><h1>Hello from static-site operator</h1></body></html>"
SERVICE_SUFFIX = "-service"

# Spec defaults
DEFAULT_REPLICAS = 1
SERVICE_TYPE_CLUSTER_IP = "ClusterIP"
SERVICE_TYPE_NODE_PORT = "NodePort"
SERVICE_TYPES = (SERVICE_TYPE_CLUSTER_IP, SERVICE_TYPE_NODE_PORT)

# Condition Types
COND_READY = "Ready"

# Condition Reasons
REASON_AVAILABLE = "Available"
REASON_PROGRESSING = "Progressing"
REASON_ERROR = "Error"
REASON_PENDING = "Pending"

# Event Reasons
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_CHILD_CREATED = "ChildCreated"
EVENT_REASON_CHILD_UPDATED = "ChildUpdated"
EVENT_REASON_CHILD_DELETED = "ChildDeleted"
EVENT_REASON_FINALIZER_REMOVED = "FinalizerRemoved"
