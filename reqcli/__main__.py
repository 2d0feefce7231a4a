import sys

from reqcli.app.main import main

sys.exit(main())
