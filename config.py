"""Shared configuration constants for the stack entrypoints.

Centralizes paths, binaries and ownership used by the bootstrap modules.
Per-deployment values (credentials, domain) come from the environment via
bootstrap.settings.
"""

# MariaDB
MYSQL_DATA_DIR = "/var/lib/mysql"
MYSQL_MARKER_NAME = ".bootstrap_done"
MYSQL_CLIENT = "mariadb"
MYSQLADMIN = "mysqladmin"
MYSQL_SERVICE = ["service", "mariadb", "start"]
MYSQL_SERVER = ["mysqld_safe"]
DEFAULT_DB_HOST = "mariadb"
DEFAULT_DB_PORT = 3306
DB_STOP_WAIT = 2.0

# WordPress / PHP-FPM
WP_PATH = "/var/www/html"
WP_CLI_PATH = "wp"
PHP_FPM_BIN = "php-fpm7.4"
USER = "www-data"
GROUP = "www-data"
USER_GROUP = f"{USER}:{GROUP}"
DIR_PERMS = 0o755
DEFAULT_WP_TITLE = "Inception WordPress Site"
DEFAULT_WP_USER_ROLE = "author"
DEFAULT_WP_TIMEOUT = 600

# NGINX
SSL_DIR = "/etc/nginx/ssl"
SSL_CERT_NAME = "nginx.crt"
SSL_KEY_NAME = "nginx.key"
SSL_DAYS = 365
SSL_KEY_SPEC = "rsa:2048"
SSL_SUBJECT = "/C=BE/ST=Brussels/L=Brussels/O=42School/OU=student/CN={domain}"
NGINX_BIN = "nginx"

# Readiness / retries
DEFAULT_PROBE_ATTEMPTS = 30
DB_PROBE_INTERVAL = 1.0
APP_PROBE_INTERVAL = 2.0
DEFAULT_ACTION_RETRIES = 2
RETRY_DELAY = 2.0
TCP_TIMEOUT = 3.0
