import os

from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")

# HTML pages for the browser-facing verification flow
templates = Jinja2Templates(directory=TEMPLATES_DIR)
