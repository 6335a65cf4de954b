import sys
from drawem.pipeline.cli import main


sys.exit(main())
