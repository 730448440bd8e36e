from pathlib import Path
import os

from huggingface_hub import snapshot_download
from student_search import config


def main() -> None:
    # Same HF env as the search service, but ONLINE for this script
    os.environ.update(config.HF_ENV_VARS)
    os.environ["HF_HUB_OFFLINE"] = "0"

    cache_root = Path(os.environ.get("TRANSFORMERS_CACHE", str(config.MODELS_DIR))).resolve()
    print(f"Using TRANSFORMERS_CACHE: {cache_root}")

    repo_id = config.EMBEDDING_MODEL
    print(f"\nDownloading embedding model: {repo_id}")
    local_path = snapshot_download(repo_id=repo_id, local_files_only=False)
    print(f"Cached at: {local_path}")

    # sentence-transformers repos ship modules.json; without it pooling falls back to defaults
    modules = Path(local_path) / "modules.json"
    if modules.exists():
        print(f"  Found modules.json at: {modules}")
    else:
        print(f"  WARNING: modules.json NOT found in: {local_path}")

    print("\nDone. You can now set HF_HUB_OFFLINE=1 for the search service.")


if __name__ == "__main__":
    main()
