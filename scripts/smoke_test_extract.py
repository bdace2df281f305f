"""Run the CV extraction pipeline against a real Ollama server.

Usage:
  python scripts/smoke_test_extract.py path/to/cv.pdf [--save]

Prints the normalised fields. With --save a candidate record is created
from them, the way the upload screen does after review.
"""
import json
import os
import sys

# ensure project root is on sys.path so `import cvflow` works when running this script
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from cvflow import create_app
from cvflow.errors import CvflowError
from cvflow.extensions import clients, db
from cvflow.services import lifecycle
from cvflow.services.extraction import extract_pdf
from cvflow.services.store import CandidateStore


def main(argv):
    if not argv:
        print(__doc__)
        return 2
    path = argv[0]
    app = create_app()
    with app.app_context():
        with open(path, "rb") as f:
            data = f.read()
        try:
            fields, text = extract_pdf(data, clients.llm,
                                       marker=app.config["FORM_MARKER"],
                                       window=app.config["FORM_WINDOW_CHARS"])
        except CvflowError as e:
            print("extraction failed:", e.code, e.message)
            return 1
        print("document chars:", len(text))
        print(json.dumps(fields, ensure_ascii=False, indent=2))
        if "--save" in argv:
            db.create_all()
            c = lifecycle.create_candidate(CandidateStore(db.session), fields)
            print("Created Candidate id:", c.id)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
