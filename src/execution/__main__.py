from src.execution.cli import main

main()
