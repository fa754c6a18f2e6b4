from fnmcp.cli import main

main()
