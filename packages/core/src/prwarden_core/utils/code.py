import fnmatch

BINARY_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".jar",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".bin",
    ".pyc",
}

# Generated dependency manifests. Reviewing them only burns tokens.
LOCK_FILE_NAMES = {
    "package-lock.json",
    "npm-shrinkwrap.json",
    "pnpm-lock.yaml",
    "go.sum",
}


def is_lock_file(file_name: str) -> bool:
    base = file_name.rsplit("/", 1)[-1].lower()
    return base.endswith(".lock") or base in LOCK_FILE_NAMES


def is_code_file(file_name: str) -> bool:
    lowered = file_name.lower()
    if any(lowered.endswith(ext) for ext in BINARY_EXTENSIONS):
        return False
    return not is_lock_file(file_name)


def is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.ts"
    - fnmatch globs on the basename: "*.min.js"
    - Directory names/prefixes: "migrations/", "vendor" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False
