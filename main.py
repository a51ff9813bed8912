"""
CHIP-8 frontend: pygame window or headless batch run
"""

import argparse
import time

import jax
from tqdm import tqdm

from chipvm import Driver, MachineFault, ProgramTooLargeError, create_state, load_program, run, save_screenshot
from chipvm.rendering import chip8_display_to_rgb, create_color_scheme
from chipvm.logging import logger

# Conventional COSMAC VIP keypad layout on a QWERTY keyboard
KEY_LAYOUT = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}

HEADLESS_CHUNK = 1000


def run_headless(program: bytes, steps: int, consume_key_on_skip: bool, screenshot: str = None,
                 scale: int = 8, colors: str = "classic", seed: int = 0):
    """Execute a fixed number of instructions without a window."""
    state = create_state(jax.random.PRNGKey(seed), consume_key_on_skip=consume_key_on_skip)
    state = load_program(state, program)

    start = time.time()
    with tqdm(total=steps, desc="Executing", unit="instr") as progress:
        remaining = steps
        while remaining > 0:
            chunk = min(HEADLESS_CHUNK, remaining)
            state = run(state, chunk)
            remaining -= chunk
            progress.update(chunk)
    logger.log_run_end(steps, 0, time.time() - start)

    if screenshot:
        save_screenshot(state, screenshot, scale=scale, color_scheme=colors)
        logger.info(f"Screenshot saved: {screenshot}")
    return state


def run_window(program: bytes, hz: int, consume_key_on_skip: bool, scale: int = 8,
               colors: str = "classic", seed: int = 0):
    """Interactive loop: 60 FPS rendering, machine paced by the driver's clocks."""
    import pygame

    driver = Driver(program, instruction_frequency=hz, rng=jax.random.PRNGKey(seed),
                    consume_key_on_skip=consume_key_on_skip)
    key_map = {pygame.key.key_code(name): key for name, key in KEY_LAYOUT.items()}

    pygame.init()
    screen = pygame.display.set_mode((64 * scale, 32 * scale))
    pygame.display.set_caption("chipvm")
    clock = pygame.time.Clock()
    on_color, off_color = create_color_scheme(colors)

    logger.log_run_start(driver.config)
    logger.info("Controls: ESC=Quit, P=Pause, F5=Reset")

    start = time.time()
    running = True
    paused = False
    try:
        while running:
            clock.tick(60)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_p:
                        paused = not paused
                        if not paused:
                            driver.instruction_clock.rebase(driver.time_fn())
                            driver.timer_clock.rebase(driver.time_fn())
                    elif event.key == pygame.K_F5:
                        driver.restart()
                        logger.info("Reset")
                    elif event.key in key_map:
                        driver.set_key(key_map[event.key], True)
                elif event.type == pygame.KEYUP:
                    if event.key in key_map:
                        driver.set_key(key_map[event.key], False)

            if not paused:
                driver.update()

            frame = chip8_display_to_rgb(driver.state.display, scale, on_color, off_color)
            surface = pygame.surfarray.make_surface(frame.swapaxes(0, 1))
            screen.blit(surface, (0, 0))
            pygame.display.set_caption("chipvm - BEEP" if driver.sound_active else "chipvm")
            pygame.display.flip()
    except MachineFault:
        logger.critical("Machine halted")
    finally:
        logger.log_run_end(driver.instructions_executed, driver.timer_ticks, time.time() - start)
        pygame.quit()


def main():
    parser = argparse.ArgumentParser(description="Run a CHIP-8 program")
    parser.add_argument("rom", type=str, help="Path to the program image")
    parser.add_argument("--hz", type=int, default=700, help="Instruction clock in Hz (default: 700)")
    parser.add_argument("--scale", type=int, default=8, help="Pixel upscaling factor (default: 8)")
    parser.add_argument("--colors", type=str, default="classic", help="Color scheme (default: classic)")
    parser.add_argument("--seed", type=int, default=0, help="Random source seed (default: 0)")
    parser.add_argument("--keep-keys", action="store_true",
                        help="EX9E leaves the matched key pressed")
    parser.add_argument("--headless", action="store_true", help="Run without a window")
    parser.add_argument("--steps", type=int, default=10000,
                        help="Instructions to execute in headless mode (default: 10000)")
    parser.add_argument("--screenshot", type=str, default=None,
                        help="Save the final display to this image file (headless mode)")
    parser.add_argument("--log-level", type=str, default="INFO", help="Log level (default: INFO)")
    args = parser.parse_args()

    logger.set_level(args.log_level)
    with open(args.rom, "rb") as f:
        program = f.read()
    logger.info(f"Read {args.rom} ({len(program)} bytes)")

    try:
        if args.headless:
            run_headless(program, args.steps, not args.keep_keys, args.screenshot,
                         scale=args.scale, colors=args.colors, seed=args.seed)
        else:
            run_window(program, args.hz, not args.keep_keys, scale=args.scale,
                       colors=args.colors, seed=args.seed)
    except ProgramTooLargeError as e:
        logger.critical(f"Cannot load {args.rom}: {e}")
        raise SystemExit(1)
    except MachineFault:
        logger.critical("Machine halted")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
