# mesisim

A cycle-by-cycle simulator of four processor cores, each with a private L1
data cache, kept coherent with the MESI protocol over one central snooping
bus. Caches are write-back and write-allocate and use LRU replacement.

## Installing

    pip install .

For the tests:

    pip install ".[test]"
    pytest

## Traces

A run reads four trace files named from a common prefix:

    app1_proc0.trace
    app1_proc1.trace
    app1_proc2.trace
    app1_proc3.trace

Each entry is an operation character followed by an address in hexadecimal,
with or without a `0x` prefix, separated by whitespace:

    R 0x7e1afe78
    W 0x7e1afe7c

`R` is a read and `W` is a write. A trace file that cannot be read gives that
core no work.

## Running a simulation

    mesisim -t app1 -s 5 -E 2 -b 5 -o output.txt

| Option | Meaning |
| ------ | ------- |
| `-t <prefix>` | prefix of the four trace files |
| `-s <s>` | number of set-index bits (2^s sets) |
| `-E <E>` | associativity (lines per set) |
| `-b <b>` | number of block-offset bits (2^b bytes per block) |
| `-o <file>` | file for the statistics report; standard output if left out |

`-t`, `-s`, `-E` and `-b` are required. An unknown option or a missing
required one prints a message to standard error and exits with status 1.

The report lists the simulation parameters and, for each core, its
instructions, reads, writes, execution and idle cycles, misses and miss rate,
evictions, writebacks, bus invalidations and data traffic. It ends with a bus
summary. Each run also writes the largest total cycle count of any core to
`x.txt` in the current directory, as a line of the form
`Total Execution Cycles:<n>`.

## Sweeping cache parameters

    mesisim-sweep mesisim app1 plot.csv

The first argument is the simulator command to run. The sweep runs it once
per parameter value, varying one at a time: `s` over 2, 4, 8, 16 (with
E = 2, b = 5); `E` over 2, 4, 8, 16, 64, 128 (with s = 6, b = 5); and `b`
over 2, 4, 8, 16 (with s = 6, E = 2). Each run writes its report to
`output.txt`. After each run the sweep reads the cycle count from `x.txt` and
writes a CSV with a `Para ,Val, Cycles` header and one row per run. Called
with a different number of arguments it prints `sim_path trace csv` and does
nothing.

## Using it from Python

    from mesisim.simulator import simulate
    from mesisim.report import format_report

    result = simulate("app1", 5, 2, 5)
    print(result.max_cycles())
    print(format_report(result, "app1", 5, 2, 5))

`Simulator` takes the traces as four sequences of `(op, address)` pairs,
where the address is a hex string or an integer, so a run can be set up
without any files:

    from mesisim.simulator import Simulator

    traces = [[("R", 0x100)], [("W", 0x100)], [], []]
    result = Simulator(2, 2, 4, traces).run()

`Simulator.step()` advances one clock cycle and returns whether work remains;
`run()` returns a `SimulationResult` holding the per-core `Stats`, the number
of cycles simulated and the invalidation count.

Other modules:

- `mesisim.model` — `MESIState`, `BusType`, `CacheLine`, `Cache`, `Stats`,
  `BusRequest`, `LRUClock` and `parse_address`.
- `mesisim.report` — `format_report`, `format_cycles_summary` and
  `write_cycles_file`.
- `mesisim.blockcache` — a separate time-stamped block cache (`SetCache`,
  `Block`, `Geometry`, `Address`, `MESI`, `all_done`); the simulator does not
  use it.
- `mesisim.usage` — `help_text()` and `print_help()` describing the options.

## Not included

The `mesisim` command has no `-h` option: passing it is reported as an
unknown option. The option description is available from
`mesisim.usage.print_help()`.