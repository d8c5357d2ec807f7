import os

# Tests run against the lightweight SQLite configuration unless the caller
# exports USE_POSTGRES=true.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "project.settings")
os.environ.setdefault("USE_POSTGRES", "false")
os.environ.setdefault("UAMS_SCOPE_OVERRIDE_POLICY", "validate")
