from agentwatch.app import main

main()
