"""Allow ``python -m consensus_verifier.cli`` execution."""

import sys

from consensus_verifier.cli.verify import main

sys.exit(main())
