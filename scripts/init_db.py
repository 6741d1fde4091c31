import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.cdms import create_app
from app.cdms.seed import seed_defaults
from app.cdms.state import current_state


def seed_only() -> None:
    """
    Seed default document types and the default workflow in an idempotent way.
    Does NOT touch existing reference data or documents.
    """
    app = create_app()
    st = current_state(app)
    if seed_defaults(st):
        print("Seeded default document types/workflow.")
    else:
        print("Catalog already populated; nothing to seed.")
    print(f"Document types: {len(st.document_types)}")
    print(f"Workflows: {len(st.workflows)}")


def main() -> None:
    seed_only()


if __name__ == "__main__":
    main()
