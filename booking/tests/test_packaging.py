# booking/tests/test_packaging.py

import re
from pathlib import Path

from django.conf import settings
from django.test import SimpleTestCase


class PackageMetadataTests(SimpleTestCase):
    def test_readme_is_the_project_readme(self):
        pyproject = (Path(settings.BASE_DIR) / "pyproject.toml").read_text()
        match = re.search(r'^readme\s*=\s*"([^"]+)"', pyproject, re.MULTILINE)
        self.assertIsNotNone(match)
        self.assertEqual(match.group(1), "README.md")
        self.assertIn("# booking-system", (Path(settings.BASE_DIR) / match.group(1)).read_text())
