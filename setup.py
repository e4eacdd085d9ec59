from setuptools import setup


setup(
    name="ledger-doctor",
    version="0.1.0",
    description="Parse messy monthly sales sheets into validated daily records and reconcile them against a ledger",
    packages=["ledger_doctor"],
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "structlog",
    ],
    entry_points={
        "console_scripts": [
            "ledger-doctor=ledger_doctor.cli:main",
        ]
    },
)
