from facegrid.cli.main import main

raise SystemExit(main())
