"""Print the OpenAPI document for the RecoverHub API as JSON."""

import json

from recoverhub.main import app

if __name__ == "__main__":
    print(json.dumps(app.openapi()))
