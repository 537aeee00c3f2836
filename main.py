"""
Fern Programming Language - Main Entry Point
A small dynamically-typed scripting language with closures, arrays and hashes
"""

import sys
import argparse
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from lexing import KEYWORDS
from parsing import create_parser, create_debug_parser, pretty_print_ast
from interpreter import create_interpreter, create_debug_interpreter
from runtime import NULL
from error_handling import FernParseError, FernRuntimeError, format_parse_errors


VERSION = "Fern v0.3.0"
HISTORY_FILE = "~/.fern_history"
HISTORY_LENGTH = 1000


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='Fern Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.fern            # Run a Fern script
  %(prog)s -i                     # Interactive mode
  %(prog)s --tokens script.fern   # Show the token stream
  %(prog)s --parse script.fern    # Parse and show the AST
  %(prog)s --debug script.fern    # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Fern script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Tokenize file and show the tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the AST (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_script(script_path: str) -> str:
  """Read a script, exiting with a hint when it cannot be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    print(f"  Hint: Check the file path and make sure the file exists")
    sys.exit(1)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print(f"  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)


def tokenize_file(script_path: str, debug: bool = False) -> None:
  """Tokenize a Fern script file and show the tokens"""
  parser = create_debug_parser() if debug else create_parser()
  source = read_script(script_path)

  for token in parser.tokenize(source):
    print(token)


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse a Fern script file and show the AST"""
  parser = create_debug_parser() if debug else create_parser()
  source = read_script(script_path)

  print(f"Parsing {script_path}...")
  program, errors = parser.parse_string(source)

  if errors:
    print(f"Parse errors in '{script_path}':")
    print(format_parse_errors(errors, source))
    sys.exit(1)

  print(f"\nParsed {len(program.statements)} top-level statements:")
  print("=" * 50)
  print(pretty_print_ast(program))
  print("Canonical form:")
  print(program)


def run_script_file(script_path: str, debug: bool = False) -> None:
  """Run a Fern script file with full interpretation"""
  interpreter = create_debug_interpreter() if debug else create_interpreter()
  source = read_script(script_path)

  try:
    result = interpreter.run_string(source, script_path)
    if result is not NULL:
      print(result.inspect())

  except FernParseError as e:
    print(f"Parse error in '{script_path}': {e}")
    sys.exit(1)
  except FernRuntimeError as e:
    print(f"\n{'='*70}")
    print(f"Runtime Error in '{script_path}'")
    print(f"{'='*70}")
    print(f"\nError: {e.message}")
    print(f"\n{'='*70}\n")
    sys.exit(1)
  except RecursionError:
    print(f"Runtime Error in '{script_path}': maximum recursion depth exceeded")
    sys.exit(1)
  except Exception as e:
    print(f"Unexpected error while executing '{script_path}': {e}")
    if debug:
      import traceback
      traceback.print_exc()
    sys.exit(1)


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  # Setup history file
  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except (FileNotFoundError, PermissionError, OSError):
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(HISTORY_LENGTH)

  completions = sorted(KEYWORDS) + [":tokens", ":parse", ":env", ":help", "exit"]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit
  atexit.register(lambda: readline.write_history_file(history_file))


def show_help() -> None:
  print("REPL Commands:")
  print("  :tokens <src>     - Show the token stream")
  print("  :parse <src>      - Show the parsed AST")
  print("  :env              - Show global bindings")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  const x = 5;                      - Binding (var works too)")
  print("  const add = fun(a, b) { a + b };  - Function literal")
  print("  add(1, 2)                         - Call")
  print("  if (x > 1) { x } else { 0 }       - Conditional expression")
  print("  [1, 2, 3][0]  {\"a\": 1}[\"a\"]       - Arrays and hashes")


def eval_repl_line(code: str, interpreter) -> None:
  """Evaluate one REPL line in the interpreter's global environment"""
  try:
    result = interpreter.run_string(code)
    print(f"=> {result.inspect()}")
  except FernParseError as e:
    print(format_parse_errors(e.errors, code))
  except FernRuntimeError as e:
    print(f"\nRuntime Error:")
    print(f"  {e.message}")
    print()


def run_interactive_mode(debug: bool = False) -> None:
  """Run Fern in interactive mode with full interpretation"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_debug_interpreter() if debug else create_interpreter()

  while True:
    try:
      code = input("fern> ")

      if code.strip() == "exit":
        break

      if not code.strip():
        continue

      if code.startswith(":tokens "):
        for token in parser.tokenize(code[8:]):
          print(f"  {token}")
        continue

      if code.startswith(":parse "):
        program, errors = parser.parse_string(code[7:])
        if errors:
          print(format_parse_errors(errors, code[7:]))
        else:
          print(pretty_print_ast(program))
          print(program)
        continue

      if code.strip() == ":env":
        bindings = interpreter.global_env.store
        if bindings:
          for name, value in bindings.items():
            val_str = value.inspect()
            if len(val_str) > 60:
              val_str = val_str[:57] + "..."
            print(f"  {name} = {val_str}")
        else:
          print("  (no bindings)")
        continue

      if code.strip() == ":help":
        show_help()
        continue

      eval_repl_line(code, interpreter)

    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break
    except RecursionError:
      print("Runtime Error: maximum recursion depth exceeded")
    except Exception as e:
      print(f"Unexpected error: {e}")
      if debug:
        import traceback
        traceback.print_exc()
      print("  Hint: If this keeps happening, try restarting or use --debug for more details")


def show_language_info() -> None:
  """Show Fern language information"""
  print("Fern Programming Language")
  print("=" * 50)
  print("A small dynamically-typed scripting language with:")
  print("• First-class functions and closures")
  print("• Integers, booleans, strings, arrays and hashes")
  print("• Errors as values")
  print()


def main() -> None:
  """Main entry point for Fern"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args()

  if len(sys.argv) == 1:
    # No arguments - show info and start interactive mode
    show_language_info()
    print("Starting interactive mode...")
    print("Use 'fern --help' for command line options")
    print()
    run_interactive_mode(debug=False)
    return

  if args.script:
    if args.tokens:
      tokenize_file(args.script, debug=args.debug)
    elif args.parse:
      parse_file(args.script, debug=args.debug)
    else:
      run_script_file(args.script, debug=args.debug)

  elif args.interactive:
    run_interactive_mode(debug=args.debug)

  else:
    arg_parser.print_help()
    print()
    show_language_info()


if __name__ == "__main__":
  main()
