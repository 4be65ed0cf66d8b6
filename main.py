#!/usr/bin/env python

import sys


def main():
    """Main entry point - picks generator, machine game or registration bot"""
    if '--generate' in sys.argv:
        from account_machine.account_generator import main as generator_main
        generator_main(sys.argv[1:])
    elif '--machine' in sys.argv:
        from account_machine.rich_cli import main as machine_main
        sys.exit(machine_main())
    else:
        # Registration bot is the default mode
        from account_machine.cli import main as cli_main
        cli_main(sys.argv[1:])


if __name__ == "__main__":
    main()
