from buildersmcp.cli.main import main

main()
