import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

DOMAINS = ("auth", "wallet", "projects", "owner", "support", "notifications")

DOMAIN_CONFIGS = {
    domain: {
        "paths": [ROOT / "routers" / domain],
        "allowed_prefixes": [f"routers.{domain}", "routers.dependencies"],
    }
    for domain in DOMAINS
}

# Only these modules may reach into a domain from outside it
FACADES = {
    "auth": ROOT / "core" / "users.py",
    "wallet": ROOT / "core" / "wallet.py",
    "projects": ROOT / "core" / "projects.py",
    "notifications": ROOT / "core" / "notifications.py",
}


def _iter_python_files(paths):
    for base in paths:
        if not base.exists():
            continue
        for path in base.rglob("*.py"):
            if path.is_file():
                yield path


def _iter_imported_modules(tree):
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                yield node.module


def _is_cross_domain_import(module_name, allowed_prefixes):
    if not module_name.startswith("routers."):
        return False
    for prefix in allowed_prefixes:
        if module_name == prefix or module_name.startswith(prefix + "."):
            return False
    return True


def test_no_cross_domain_imports():
    """
    Enforces "no cross-domain imports" across all Python modules within each domain,
    including `api.py` routers, and also `service.py`/`repository.py`/`schemas.py`.
    Other domains are reached through the `core.*` facades.
    """
    violations = []
    for domain, config in DOMAIN_CONFIGS.items():
        for path in _iter_python_files(config["paths"]):
            tree = ast.parse(path.read_text(), filename=str(path))
            for module_name in _iter_imported_modules(tree):
                if _is_cross_domain_import(module_name, config["allowed_prefixes"]):
                    violations.append(f"{path}: {module_name} ({domain})")

    if violations:
        joined = "\n".join(sorted(violations))
        raise AssertionError(f"Cross-domain imports detected:\n{joined}")


def test_facades_only_reach_their_own_domain():
    violations = []
    for domain, path in FACADES.items():
        tree = ast.parse(path.read_text(), filename=str(path))
        for module_name in _iter_imported_modules(tree):
            if _is_cross_domain_import(module_name, [f"routers.{domain}"]):
                violations.append(f"{path}: {module_name}")

    if violations:
        joined = "\n".join(sorted(violations))
        raise AssertionError(f"Facade imports another domain:\n{joined}")


def test_non_auth_data_layers_do_not_import_user_model():
    """
    Data ownership rule: `User` is owned by Auth/Profile.

    Services and repositories outside Auth must not import `User` from `models`; use
    `core.users` for lookups and pass around `account_id`. Route modules may
    still annotate the resolved caller as `User`.
    """
    violations = []
    for domain in ("wallet", "projects", "owner", "support", "notifications"):
        base = ROOT / "routers" / domain
        for path in _iter_python_files([base]):
            if path.name not in ("service.py", "repository.py") and not path.name.endswith("_service.py"):
                continue
            tree = ast.parse(path.read_text(), filename=str(path))
            for node in ast.walk(tree):
                if isinstance(node, ast.ImportFrom) and node.module == "models":
                    for alias in node.names:
                        if alias.name == "User":
                            violations.append(str(path))

    if violations:
        joined = "\n".join(sorted(set(violations)))
        raise AssertionError(
            "Non-auth domains import `User` directly. Use `core.users` instead:\n"
            + joined
        )
