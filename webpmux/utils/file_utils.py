import os

supported_extensions = {".webp"}

WEBP_SIGNATURE_SIZE = 12


def get_file_signature(file_path, num_bytes=WEBP_SIGNATURE_SIZE):
    with open(file_path, "rb") as f:
        return f.read(num_bytes)


def is_webp_signature(signature):
    return len(signature) >= WEBP_SIGNATURE_SIZE and signature[:4] == b"RIFF" and signature[8:12] == b"WEBP"


def find_webp_files(path):
    """Yield the WebP files under ``path`` (a file or a directory), by extension or by signature."""
    if os.path.isfile(path):
        yield path
        return
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for file in sorted(files):
            file_path = os.path.join(root, file)
            if os.path.splitext(file)[1].lower() in supported_extensions:
                yield file_path
            elif is_webp_signature(get_file_signature(file_path)):
                yield file_path
