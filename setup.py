"""
Setup script for the Document Assembler
"""
from setuptools import setup

setup(
    name="document-assembler",
    version="1.0.0",
    description="Template resolution engine for personalized legal documents",
    author="Your Firm",
    python_requires=">=3.10",
    py_modules=[
        "config",
        "models",
        "context_map",
        "diagnostics",
        "conditions",
        "placeholders",
        "blocks",
        "conditionals",
        "formatting",
        "dutch",
        "collection_registry",
        "loops",
        "grammar",
        "numbering",
        "clauses",
        "context_builder",
        "resolver",
        "docx_adapter",
        "assembler",
    ],
    install_requires=[
        "python-dateutil>=2.8.2",
        "click>=8.1.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
        "python-docx>=1.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "assemble=assembler:main",
        ],
    },
)
