# nbversion/__main__.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
from nbversion.cli import main

if __name__ == "__main__":
    main()
