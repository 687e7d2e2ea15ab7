from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def test_pulumi_installs_requirements():
    project = (ROOT / "Pulumi.yaml").read_text()
    assert "toolchain: pip" in project
    assert "virtualenv: venv" in project

    requirements = (ROOT / "requirements.txt").read_text().split()
    assert "pulumi-gcp>=10.1.0,<11.0.0" in requirements
    assert any(r.startswith("pulumi>=") for r in requirements)
