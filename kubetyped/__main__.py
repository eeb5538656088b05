"""
CLI entry point, when used as a module: `python -m kubetyped`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kubetyped").
"""
from kubetyped import cli

if __name__ == '__main__':
    cli.main()
