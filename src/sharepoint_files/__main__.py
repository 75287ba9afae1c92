import sys

from sharepoint_files.cli import main

sys.exit(main())
