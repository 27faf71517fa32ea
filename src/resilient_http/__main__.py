from resilient_http.cli import main

raise SystemExit(main())
